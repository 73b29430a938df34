import re

ANSI_ESCAPE_CODE_RE = re.compile(r"\x1b\[\d+(;\d+)*m")
