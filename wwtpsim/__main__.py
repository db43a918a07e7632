# wwtpsim/__main__.py
import sys

from wwtpsim.cli import main

sys.exit(main())
