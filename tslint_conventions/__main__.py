"""Allow ``python -m tslint_conventions``."""

from tslint_conventions.main import main

raise SystemExit(main())
