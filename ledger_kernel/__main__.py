import sys

from ledger_kernel.cli import main

sys.exit(main())
