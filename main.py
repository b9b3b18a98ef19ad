import sys

from rich.pretty import pprint

from flagship import *


if __name__ == '__main__':
    parser = Parser()
    parser.add_argument(foo := Flag("foo", "f", descr="a trivial flag"))
    parser.add_argument(bar := StringOption("bar", "b", descr="a trivial string option"))

    if not parser.parse(CommandLine(sys.argv[1:])):
        parser.report.trigger(shell=True)

    pprint({"foo": foo.value, "bar": bar.value, "remaining": list(parser.remaining)})
    if parser.report:
        parser.report.trigger(shell=True)
