# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
CLI entrypoint for `python -m valuelife`.
"""

from .cli import main

if __name__ == "__main__":
	import sys
	sys.exit(main())
