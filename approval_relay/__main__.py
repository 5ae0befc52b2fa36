from approval_relay.main import main

main()
