"""
Common utilities shared by the installer: command execution, logging,
package management and host inspection.
"""
