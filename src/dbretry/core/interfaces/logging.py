from abc import ABC, abstractmethod


class LoggingPort(ABC):
    @abstractmethod
    def info(self, msg: str, *args):
        pass

    @abstractmethod
    def warning(self, msg: str, *args, exc_info=None):
        pass

    @abstractmethod
    def error(self, msg: str, *args, exc_info=None):
        pass

    @abstractmethod
    def debug(self, msg: str, *args, exc_info=None):
        pass
