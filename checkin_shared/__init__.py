"""
Types shared by the check-in backend and its API client.
"""
