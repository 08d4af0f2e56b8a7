import sys

from rich.pretty import pprint

from optable import *


registry = Registry(
    params=[
        Param("port", "p", help="The port to connect to."),
        Param("host", "h", "localhost", help="The host to connect to."),
    ],
    flags=[
        Flag("secure", "s", help="Use SSL for encryption."),
        Flag("quit", "q", help="Quit after connecting."),
        Flag("usage", "u", help="Show this help and exit."),
    ],
)


if __name__ == '__main__':
    outcome = registry.parse()
    if outcome.get_one("usage"):
        registry.usage(outcome=outcome)
        sys.exit(1)
    sys.argv[1:] = outcome.leftovers
    pprint(outcome)
