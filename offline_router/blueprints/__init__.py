"""
Church App Offline Gateway
Blueprint registry.

    health_bp  /_sw/health/*   readiness / liveness probes
    sw_bp      /_sw/*          lifecycle, message channel, clients, push
    proxy_bp   /<path>         fetch interception (catch-all, registered last)
"""
