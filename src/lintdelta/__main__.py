import sys

from lintdelta.cli import main

sys.exit(main())
