"""Canary job probe for the DIRAC workload management system.

One invocation either submits canary jobs or checks the ones submitted by
earlier invocations. Nothing lives between invocations except the marker
files in the job store, so every check re-reads the store, asks DIRAC for
each job's status and decides from the status and the job's age whether to
wait, clean up, delete or reschedule.
"""
