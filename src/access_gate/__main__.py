from __future__ import annotations

import sys

from access_gate.cli import main

sys.exit(main())
