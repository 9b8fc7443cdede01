"""
Risk Calculation Engine
=======================
Pure, synchronous calculators over daily return series:
- Portfolio return aggregation (portfolio)
- Historical Simulation VaR & Expected Shortfall (risk_metrics)
- Pearson correlation matrix (statistics)
- Scenario stress testing (stress_testing, scenarios)
- Independent-Gaussian Monte Carlo (monte_carlo)

Return series are supplied by the providers in ``market_data``.
"""
