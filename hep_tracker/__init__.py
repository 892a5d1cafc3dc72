"""Home exercise program tracker.

Clients check off their assigned exercises each day and review weekly
progress; physiotherapists assign exercises and review per-client
completion summaries.
"""

__version__ = "0.1.0"
