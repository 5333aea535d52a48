"""
MyWeek – weekly schedule reconciliation for students.
"""
