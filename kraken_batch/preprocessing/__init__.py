# kraken_batch/preprocessing/__init__.py
