"""
Rule-based analyzers.  Each is a pure function of the ``DataPacket``.

Modules
-------
base         : ``Analyzer`` ABC + ``AnalysisResult`` + ``impact()`` helper.
debt         : DTI, refinance, consolidation, early repayment, offset.
cashflow     : emergency fund, expense ratio, surplus plan, deficit, stability.
investment   : concentration, diversification, rebalancing drift.
property     : rental yield, capital growth.
risk         : leverage, geographic concentration.
liquidity    : liquid-asset ratio, cash reserve.
tax          : loss harvesting, CGT-discount timing.
time_horizon : retirement runway.
runner       : ``build_analyzers()`` + ``run_analyzers()`` (thread pool).
"""
