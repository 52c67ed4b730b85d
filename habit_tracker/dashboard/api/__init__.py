from . import habits, stats, tracker

__all__ = ['habits', 'stats', 'tracker']
