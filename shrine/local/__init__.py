"""Filesystem-backed subnet, secret, deployment and team stores."""