from lazycommit.cli import run_lazycommit

run_lazycommit()
