"""Domain layer: application exceptions.

No dependencies on infrastructure or presentation.
"""

from app.domain.exceptions import AuthenticationException, PortfolioException

__all__ = ["AuthenticationException", "PortfolioException"]
