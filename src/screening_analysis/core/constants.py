"""Encoding constants shared by the response data models."""

# Missing responses are stored in int8 matrices as -1
MISSING_VALUE = -1

# Codes used by the survey for "refused" and "don't know"
REFUSED_CODE = 7
DONT_KNOW_CODE = 9
