from kraken_batch.cli import main

main()
