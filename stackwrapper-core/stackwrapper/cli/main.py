import os


def main():
    # indicate to the environment we are starting from the CLI
    os.environ["STACKWRAPPER_CLI"] = "1"

    # config profiles are the first thing that need to be loaded (especially before stackwrapper.config!)
    from .profiles import set_profile_from_sys_argv

    set_profile_from_sys_argv()

    from .stackwrapper import stackwrapper

    stackwrapper()


if __name__ == "__main__":
    main()
