class ExporterError(Exception):
    """Base class of every error that fails a scrape."""


class CollectError(ExporterError):
    def __init__(self, args: list[str], reason: str):
        super().__init__("{}: {}".format(' '.join(args), reason))
        self.command = args
        self.reason = reason


class DumpParseError(ExporterError):
    def __init__(self, lineno: int, reason: str, line: str = ''):
        super().__init__("dump line {}: {}".format(lineno, reason))
        self.lineno = lineno
        self.reason = reason
        self.line = line


class AnnotationFileError(ExporterError):
    def __init__(self, path: str, reason: str):
        super().__init__("cannot read annotation file {}: {}".format(path, reason))
        self.path = path
        self.reason = reason
