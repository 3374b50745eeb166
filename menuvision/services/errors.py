class ServiceError(Exception):
    pass


class LanguageModelConfigurationError(ServiceError):
    pass


class LanguageModelError(ServiceError):
    pass


class RateLimitedError(LanguageModelError):
    pass



class QueueFullError(ServiceError):
    pass
