import sys

from noters.cli import main

sys.exit(main())
