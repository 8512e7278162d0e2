# peg_adsorption/core/plotting_style.py
"""
Defines the unified plotting style for the PEG adsorption analysis.
Includes the STYLE dictionary and the setup_style() function to apply these settings.
"""

import matplotlib as mpl
import seaborn as sns

STYLE = {
    # Adsorption state colors
    'state_colors': {
        'all': '#7F7F7F',          # grey
        'adsorbed': '#DAA520',     # goldenrod (on the gold surface)
        'nonadsorbed': '#4682B4',  # steel blue
    },
    'line_width': 2,
    'font_family': 'sans-serif',
    'font_sizes': {
        'axis_label': 14,
        'tick_label': 12,
        'annotation': 11,
    },
    'grid': {
        'color': 'lightgrey',
        'alpha': 0.3,
        'linestyle': '-',
    },
}


def setup_style():
    """Apply the unified styling to matplotlib and seaborn"""
    sns.set_style("whitegrid", {
        'grid.color': STYLE['grid']['color'],
        'grid.alpha': STYLE['grid']['alpha'],
        'grid.linestyle': STYLE['grid']['linestyle'],
    })

    mpl.rcParams['font.family'] = STYLE['font_family']
    mpl.rcParams['axes.labelsize'] = STYLE['font_sizes']['axis_label']
    mpl.rcParams['xtick.labelsize'] = STYLE['font_sizes']['tick_label']
    mpl.rcParams['ytick.labelsize'] = STYLE['font_sizes']['tick_label']
    mpl.rcParams['legend.fontsize'] = STYLE['font_sizes']['annotation']
    mpl.rcParams['lines.linewidth'] = STYLE['line_width']

    mpl.rcParams['figure.dpi'] = 100
    mpl.rcParams['savefig.dpi'] = 150
