"""
Hard iteration ceilings.

These guard against pathological calendars and specs (zero-length months,
probabilities that never fire, self-referencing links); they are not
performance knobs.
"""

# Forward search window of a ``firstAfter`` computed step, in days.
FIRST_AFTER_SEARCH_DAYS = 200

# Day-by-day scans (seasonal, moon, range, uncached random, occurrence counting).
SCAN_LIMIT = 10_000

# Candidate dates examined while precomputing random occurrences.
GENERATION_LIMIT = 50_000

# Months stepped by the week-of-month enumerator; years stepped by computed ones.
MONTH_STEP_LIMIT = 1_000

# Dates kept by one random-occurrence precomputation.
RANDOM_CACHE_LIMIT = 500

# Linked-event and ``event:`` anchor hops followed before giving up.
MAX_LINK_DEPTH = 8
