"""
FairValue - hedonic valuation engine for strata listings.

Estimates fair market value from observed sales with a log-linear OLS model:
- Pure-Python linear algebra and OLS with coefficient significance
- Listing encoder with declared defaults and dynamic location dummies
- Deterministic predictor with an 80% price range
- Counterfactual breakdown of the price into named factor groups
"""

__version__ = "1.0.0"
