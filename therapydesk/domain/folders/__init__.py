"""Session folders domain - Therapy programs, numbering, statistics and the active folder"""
