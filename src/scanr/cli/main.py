"""Main CLI entry point"""

from scanr.cli.scan import scan_command

cli = scan_command


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
