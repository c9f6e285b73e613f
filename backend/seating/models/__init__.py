from .seating import SeatingChart, SeatingChartVersion

__all__ = [
    'SeatingChart', 'SeatingChartVersion',
]
