from .base import Interceptor, InterceptorChain
from .header import HeaderInterceptor
from .logging import LoggingInterceptor

__all__ = [
    "Interceptor",
    "InterceptorChain",
    "HeaderInterceptor",
    "LoggingInterceptor",
]
