import termtables

from .constants import LOGS_PATH
from .helpers import create_dirs

CYAN = "\033[96m"
BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"

BOLD = "\033[1m"

END = "\033[0m"


class Logger:
    def __init__(self, log_file):
        self.log_file = log_file

    # log to file
    def log(self, text):
        create_dirs(self.log_file)
        with open(self.log_file, mode="a", encoding="utf-8") as logs:
            logs.write(text + "\n")

    # print to std out
    def stdout(self, text):
        print(text)

    def _emit(self, tag, color, text, value=None):
        log_text = f"{tag} {text}"
        stdout_text = self.hl(f" {tag} ", color) + text

        if value is not None:
            log_text = self.cln(log_text, value)
            stdout_text = self.cln(stdout_text, self.hl(value, BOLD))

        self.log(log_text)
        self.stdout(stdout_text)

    def info(self, text, value=None):
        self._emit("🔵 [INFO]", BLUE, text, value)

    def okay(self, text, value=None):
        self._emit("🟢 [OKAY]", GREEN, text, value)

    def warn(self, text, value=None):
        self._emit("🟠 [WARN]", YELLOW, text, value)

    def error(self, text, value=None):
        self._emit("🔴 [ERROR]", RED, text, value)

    def report_table(self, table, header, flagged_column=None):
        """
        Render rows both to the log file and, colored, to stdout.

        When ``flagged_column`` is given, rows whose cell in that column is
        truthy are highlighted red, the rest green.
        """
        if not table:
            self.info("Nothing to report")
            return

        log_table = termtables.to_string(
            table,
            header=header,
            style=termtables.styles.rounded_double,
        )
        self.log(log_table)

        stdout_table = [self.color_row(row, flagged_column) for row in table]
        table_colored_string = termtables.to_string(
            stdout_table,
            header=header,
            style=termtables.styles.rounded_double,
        )

        self.stdout(table_colored_string)

    def color_row(self, row, flagged_column=None):
        hlcolor = GREEN

        if flagged_column is not None and row[flagged_column]:
            hlcolor = RED

        return [self.hl(cell, hlcolor) for cell in row]

    def hl(self, text, color=BOLD):
        return f"{color}{text}{END}"

    def hlgreen(self, text):
        return self.hl(text, GREEN)

    def hlblue(self, text):
        return self.hl(text, BLUE)

    def cln(self, text1, text2):
        return f"{text1}: {text2}"

    def divider(self):
        self.log(" - +" * 20)
        self.stdout((self.hlblue(" -") + self.hlgreen(" +")) * 20)


logger = Logger(LOGS_PATH)
