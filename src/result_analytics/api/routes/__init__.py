from . import courses, groups, health, students

__all__ = ['courses', 'groups', 'health', 'students']
