from deployconf.deployconf import main


if __name__ == "__main__":
    main()
