"""resolve_oracle/harness.py – Extract, analyze, verify.

An *analyzer* is any callable ``(clean_text, filename) -> AnalysisResult``.
The bundled one is :func:`fixturelang.analyze`; others are loaded by
``"module:callable"`` name.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from resolve_oracle.config import OracleConfig
from resolve_oracle.errors import AnalysisError, OracleError, OracleErrorCodes
from resolve_oracle.markers import extract
from resolve_oracle.model import BindingModel, ExternalLibrary, Renderer, default_renderer
from resolve_oracle.verifier import ResolutionVerifier, VerificationReport

logger = logging.getLogger(__name__)

DEFAULT_ANALYZER = "fixturelang:analyze"


@dataclass
class AnalysisResult:
    """Everything the verifier needs from one resolver run."""
    model: BindingModel
    library: ExternalLibrary
    renderer: Renderer = default_renderer
    external_descriptors: Dict[str, Any] = field(default_factory=dict)
    external_elements: Dict[str, Any] = field(default_factory=dict)
    # Resolver-side diagnostics, informational only
    diagnostics: List[Any] = field(default_factory=list)


class Analyzer(Protocol):
    def __call__(self, text: str, filename: str) -> AnalysisResult: ...


def load_analyzer(name: str) -> Analyzer:
    """Import an analyzer given as ``"package.module:attr"``."""
    module_name, sep, attr = name.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Analyzer must be given as 'module:callable', got {name!r}")
    module = importlib.import_module(module_name)
    target: Any = module
    for part in attr.split("."):
        target = getattr(target, part)
    if not callable(target):
        raise TypeError(f"{name} is not callable")
    return target


def check_fixture(
    raw_text: str,
    analyzer: Analyzer,
    *,
    filename: str = "<fixture>",
    config: Optional[OracleConfig] = None,
) -> VerificationReport:
    """Run one annotated fixture through the whole pipeline.

    Malformed fixtures and missing contexts raise.  Mismatches are in the
    returned report unless ``config.fail_fast`` is set.
    """
    config = config or OracleConfig()
    fixture = extract(raw_text, filename=filename)

    try:
        result = analyzer(fixture.text, filename)
    except OracleError:
        raise
    except Exception as exc:
        raise AnalysisError(
            f"Analyzer failed on {filename}: {exc}",
            code=OracleErrorCodes.INTERNAL_ERROR,
        ) from exc

    for diag in result.diagnostics:
        logger.debug("%s: resolver: %s", filename, diag)

    verifier = ResolutionVerifier(
        result.model,
        result.library,
        renderer=result.renderer,
        external_descriptors=result.external_descriptors,
        external_elements=result.external_elements,
        config=config,
    )
    return verifier.verify(fixture)


def check_file(
    path: Union[str, Path],
    analyzer: Analyzer,
    *,
    config: Optional[OracleConfig] = None,
) -> VerificationReport:
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    return check_fixture(text, analyzer, filename=str(path), config=config)
