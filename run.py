from pr_reviewer.main import main


if __name__ == "__main__":
    main()
