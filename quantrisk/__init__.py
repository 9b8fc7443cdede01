"""
QuantRisk
=========
Portfolio risk calculator implementing:
- Historical Simulation VaR & Expected Shortfall
- Pairwise Pearson Correlation Matrix
- Scenario Stress Testing
- Monte Carlo Loss Distribution
"""

__version__ = "1.0.0"
