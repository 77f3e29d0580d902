from media_uplink.worker.main import main

main()
