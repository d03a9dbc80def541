"""Allow ``python -m resolve_oracle``."""

from resolve_oracle.main import main

if __name__ == "__main__":
    raise SystemExit(main())
