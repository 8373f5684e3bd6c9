#!/usr/bin/env python
# coding: utf-8

# In[ ]:


# settings.py
PORTFOLIO_DEFAULTS = {
    "start_date": "2010-01-01",
    "end_date":   "2018-06-01",
    "period": "monthly",            # Return periodicity: daily | weekly | monthly | quarterly | yearly
    "price_field": "adjClose",      # Provider field used for returns (adjusted close)
    "baseline_ticker": "XLK",       # Baseline (Rb) for the CAPM table
    "risk_free_rate": 0.0,          # Annual rate, or "treasury" to use 3-month Treasury yields
    "initial_investment": 1000,     # Scale applied to wealth-index growth tables
    "normalize_weights": False      # Global default for portfolio weight normalization
}

# Weights must sum to 1.0 within this tolerance
WEIGHT_TOLERANCE = 1e-6

DATA_PROVIDER = {
    "base_url": "https://financialmodelingprep.com/stable",
    "timeout": 30,
    "cache_dir": "cache_prices",
    "treasury_maturity": "month3",
}

# Comparison-fund CSV: canonical column -> accepted header spellings
FUND_FILE_COLUMNS = {
    "date":          ["Date", "date"],
    "fund_return":   ["Fund Return", "Fund.Return", "ContraRet", "fund_return"],
    "market_return": ["Market Return", "Market.Return", "market_return"],
    "risk_free":     ["Risk-Free Rate", "Risk.Free", "Risk Free", "risk_free"],
}
