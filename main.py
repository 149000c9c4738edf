import statistics
import sys

from rich.console import Console
from rich.table import Table

from argvault import *

console = Console()

parser = Parser("Advanced number statistics calculator.", shell=True)
parser.add_argument("-r", "--round", ArgType.INT, "Number of decimal places for output", default=2, suffix="=")
parser.add_list_argument("-n", "--numbers", ArgType.INT_LIST, "List of integers for calculation", True, delimiter=",")
parser.add_argument("-a", "--average", ArgType.BOOL, "Calculate mean average")
parser.add_argument("-m", "--median", ArgType.BOOL, "Calculate median")
parser.add_argument("-s", "--stats", ArgType.BOOL, "Show all statistics")
parser.add_argument("-v", "--verbose", ArgType.BOOL, "Detailed output")


def main(argv=None):
    if parser.parse(argv) is not Outcome.PARSED:
        return 0

    numbers = parser.get_int_list("-n")
    decimals = max(parser.get_int("-r"), 0)
    show_average = parser.get_bool("-a")
    show_median = parser.get_bool("-m")
    show_stats = parser.get_bool("-s")

    if not (show_average or show_median or show_stats):
        show_average = True

    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(justify="right")

    if parser.get_bool("-v"):
        table.add_row("input", ", ".join(map(str, numbers)))
        table.add_row("count", str(len(numbers)))
    if show_average or show_stats:
        table.add_row("average", "%.*f" % (decimals, statistics.fmean(numbers)))
    if show_median or show_stats:
        table.add_row("median", "%.*f" % (decimals, statistics.median(numbers)))
    if show_stats:
        table.add_row("min", str(min(numbers)))
        table.add_row("max", str(max(numbers)))
        table.add_row("range", str(max(numbers) - min(numbers)))
        table.add_row("sum", "%.*f" % (decimals, sum(numbers)))

    console.print(table)
    return 0


if __name__ == '__main__':
    sys.exit(main())
