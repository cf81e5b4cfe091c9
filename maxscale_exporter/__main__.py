from maxscale_exporter.main import main

main()
