"""Technical indicators for strategy scripts.

Every indicator is a Numba-compiled kernel over float64 arrays. Series
outputs keep the length of their input and hold NaN during warm-up.
Multi-output indicators return tuples here; the builtin registry exposes
them to scripts as named records.
"""

from .rolling import (
    first_valid_index,
    rolling_sum,
    rolling_mean,
    rolling_std,
    highest,
    lowest,
    shift_forward,
    crossover,
    crossunder
)

from .moving_averages import (
    sma,
    ema,
    smma,
    wma,
    hull_ma,
    alma,
    tema,
    kama
)

from .oscillators import (
    rsi,
    stochastic,
    stochastic_rsi,
    williams_r,
    cci,
    advanced_cci,
    ultimate_oscillator,
    awesome_oscillator,
    accelerator_oscillator,
    cmo,
    roc,
    price_roc,
    tsi,
    stc,
    kst,
    rvi,
    ppo,
    coppock_curve
)

from .volatility import (
    true_range,
    atr,
    stddev,
    bollinger,
    bollinger_percent_b,
    bollinger_band_width,
    keltner,
    donchian,
    price_channel,
    chandelier_exit,
    chande_kroll_stop,
    standard_error,
    volatility_index
)

from .trend import (
    macd,
    adx,
    aroon,
    parabolic_sar,
    supertrend,
    vortex,
    ichimoku,
    williams_alligator
)

from .volume import (
    money_flow_multiplier,
    money_flow_volume,
    accumulation_distribution,
    chaikin_oscillator,
    chaikin_money_flow,
    obv,
    vwap,
    mfi,
    force_index,
    elder_force_index,
    emv,
    klinger_oscillator,
    volume_oscillator,
    volume_profile,
    williams_ad
)

from .composite import (
    FIBONACCI_RATIOS,
    elder_ray,
    detrended,
    mass_index,
    bop,
    heikin_ashi,
    pivot_points,
    fibonacci,
    linear_regression,
    linear_regression_slope,
    correlation_coefficient
)


__all__ = [
    # Rolling primitives
    'first_valid_index',
    'rolling_sum',
    'rolling_mean',
    'rolling_std',
    'highest',
    'lowest',
    'shift_forward',
    'crossover',
    'crossunder',

    # Moving averages
    'sma',
    'ema',
    'smma',
    'wma',
    'hull_ma',
    'alma',
    'tema',
    'kama',

    # Oscillators
    'rsi',
    'stochastic',
    'stochastic_rsi',
    'williams_r',
    'cci',
    'advanced_cci',
    'ultimate_oscillator',
    'awesome_oscillator',
    'accelerator_oscillator',
    'cmo',
    'roc',
    'price_roc',
    'tsi',
    'stc',
    'kst',
    'rvi',
    'ppo',
    'coppock_curve',

    # Bands and volatility
    'true_range',
    'atr',
    'stddev',
    'bollinger',
    'bollinger_percent_b',
    'bollinger_band_width',
    'keltner',
    'donchian',
    'price_channel',
    'chandelier_exit',
    'chande_kroll_stop',
    'standard_error',
    'volatility_index',

    # Trend
    'macd',
    'adx',
    'aroon',
    'parabolic_sar',
    'supertrend',
    'vortex',
    'ichimoku',
    'williams_alligator',

    # Volume
    'money_flow_multiplier',
    'money_flow_volume',
    'accumulation_distribution',
    'chaikin_oscillator',
    'chaikin_money_flow',
    'obv',
    'vwap',
    'mfi',
    'force_index',
    'elder_force_index',
    'emv',
    'klinger_oscillator',
    'volume_oscillator',
    'volume_profile',
    'williams_ad',

    # Composite
    'FIBONACCI_RATIOS',
    'elder_ray',
    'detrended',
    'mass_index',
    'bop',
    'heikin_ashi',
    'pivot_points',
    'fibonacci',
    'linear_regression',
    'linear_regression_slope',
    'correlation_coefficient'
]
