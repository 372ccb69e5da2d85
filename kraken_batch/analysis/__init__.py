# kraken_batch/analysis/__init__.py
