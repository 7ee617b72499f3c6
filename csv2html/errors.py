class Csv2HtmlError(Exception):
    """Base class for every failure the render pipeline or the watch endpoint reports."""


class InvalidConfig(Csv2HtmlError):
    pass


class ReadError(Csv2HtmlError):
    pass


class TemplateError(Csv2HtmlError):
    pass


class WatchError(Csv2HtmlError):
    pass
