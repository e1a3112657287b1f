import sys

from hdrfix.cli import main

sys.exit(main())
