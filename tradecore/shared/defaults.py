"""
Centralized default values for indicator, signal, risk and simulation parameters.

This is the SINGLE SOURCE OF TRUTH for all parameter defaults.
All modules should import from here to ensure consistency.
"""

# Indicator window
MAX_LOOKBACK = 100  # Bars fed to the indicator library per evaluation

# RSI (Relative Strength Index) defaults
RSI_PERIOD = 14
RSI_NEUTRAL = 50.0  # Returned when there is not enough history

# EMA (Exponential Moving Average) defaults
EMA_SHORT_PERIOD = 9
EMA_LONG_PERIOD = 21

# MACD (Moving Average Convergence Divergence) defaults
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
MACD_HISTORY = 50  # Bars of MACD history used for min/max normalization

# Bollinger Bands defaults
BOLLINGER_PERIOD = 20
BOLLINGER_STD = 2.0

# Volatility / range defaults
ATR_PERIOD = 14
ADX_PERIOD = 14
VOLATILITY_WINDOW = 20
TRADING_DAYS_PER_YEAR = 252

# Stochastic oscillator defaults
STOCH_PERIOD = 14
STOCH_SMOOTHING = 3

# Volume defaults
VOLUME_EMA_SHORT = 5
VOLUME_EMA_LONG = 20

# Momentum (rate of change) defaults
MOMENTUM_PERIOD = 10

# Signal composition weights (must sum to 1)
TREND_WEIGHT = 0.30
MOMENTUM_WEIGHT = 0.30
VOLUME_WEIGHT = 0.20
VOLATILITY_WEIGHT = 0.20

# Momentum vote weights and the margin below which the vote is NEUTRAL
RSI_VOTE_WEIGHT = 0.3
MACD_VOTE_WEIGHT = 0.4
STOCH_VOTE_WEIGHT = 0.3
VOTE_MARGIN = 0.2

# Risk adjuster defaults
REGIME_HISTORY_SIZE = 100
REGIME_WINDOW = 50  # Candles used for regime detection
REGIME_MIN_CANDLES = 20  # Below this the regime score is neutral (0.5)
LIQUIDITY_WINDOW = 20
IDEAL_VOLATILITY = 0.02  # 2% daily volatility treated as ideal
SHOCK_SIGMA = 3.0  # Latest return beyond this many RMS returns counts as a shock
REFERENCE_VOLUME = 1000.0  # Average volume at which liquidity stops being penalized

# Trade simulator defaults
SLIPPAGE_MIN = 0.0001  # 0.01% of entry price
SLIPPAGE_MAX = 0.001  # 0.1% of entry price
REPLAY_BUFFER_SIZE = 10_000
MIN_LEVEL_DISTANCE = 0.0  # Stop/target must be strictly further than this from entry

# Monte Carlo defaults
INITIAL_BALANCE = 1000.0
NUM_PATHS = 1000
NUM_DAYS = 365
TRADES_PER_DAY = 3
WIN_RATE = 0.55
AVG_WIN = 0.02
AVG_LOSS = 0.01
RISK_FREE_RATE = 0.02  # Annual
BLOCK_SIZE = 20
MIN_CONFIDENCE = 0.3  # Minimum (risk-adjusted) confidence to open a replayed trade
STOP_ATR_MULTIPLE = 2.0
RISK_REWARD_RATIO = 2.0
POSITION_SIZE_PCT = 0.2  # 20% of balance per trade
MAX_HOLDING_BARS = 20
REPLAY_WARMUP_BARS = 50

# Best-checkpoint score weights
CHECKPOINT_WEIGHTS = {
    "accuracy": 0.3,
    "win_rate": 0.15,
    "profit_factor": 0.15,
    "expectancy": 0.1,
    "drawdown": 0.1,
    "sharpe": 0.1,
    "sortino": 0.1,
}
PROFIT_FACTOR_SCORE_CAP = 10.0  # Infinite profit factor is scored as this
