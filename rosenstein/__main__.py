from rosenstein.run import main

main()
