import sys

from inkmark.cli import main

sys.exit(main())
