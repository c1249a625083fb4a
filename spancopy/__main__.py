import sys

from spancopy.cli import main

sys.exit(main())
