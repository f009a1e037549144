"""Deployment events and observers that report them to a terminal or a log file."""