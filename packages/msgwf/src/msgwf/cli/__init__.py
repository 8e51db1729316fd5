# packages/msgwf/src/msgwf/cli/__init__.py
# Entry points: msgwf.cli.pack:main (msgwf-pack), msgwf.cli.dump:main (msgwf-dump)
