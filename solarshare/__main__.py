import sys

from solarshare.cli import main

sys.exit(main())
