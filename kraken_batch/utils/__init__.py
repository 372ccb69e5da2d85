# kraken_batch/utils/__init__.py
