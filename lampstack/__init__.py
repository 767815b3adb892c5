"""
LAMP/LEMP stack installer.

Provisions or removes an Apache/Nginx + MySQL + PHP web stack on Ubuntu and
Debian hosts.
"""
