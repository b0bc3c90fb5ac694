class UpdaterSetupError(Exception):
    """Не удалось подготовить апдейтер к запуску"""


class ChannelClosedError(Exception):
    """Канал апдейтов закрыт, запись невозможна"""
