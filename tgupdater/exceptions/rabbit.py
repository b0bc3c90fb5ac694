class RabbitBrokerNotStartedError(Exception):
    """RabbitBroker не запущен"""
