import sys

from domaingen.cli import main

sys.exit(main())
