import sys

from kpitokens.cli import main

sys.exit(main())
