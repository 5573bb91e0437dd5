import sys

from rabbitstress.cli import main

sys.exit(main())
