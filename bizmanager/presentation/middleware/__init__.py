from bizmanager.presentation.middleware.correlation import CorrelationIDMiddleware
from bizmanager.presentation.middleware.rate_limit import limiter
from bizmanager.presentation.middleware.security import SecurityHeadersMiddleware

__all__ = ["CorrelationIDMiddleware", "SecurityHeadersMiddleware", "limiter"]
