"""Portfolio reconciliation and valuation domain package."""

from live_portfolio.portfolio.session import PortfolioSession, UploadError
from live_portfolio.portfolio.valuation import PortfolioValuation, value_portfolio

__all__ = ["PortfolioSession", "PortfolioValuation", "UploadError", "value_portfolio"]
