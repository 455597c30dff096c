"""
Command-line tools for the HDLC Daemon.

Available tools:
- hdlcd-hexchanger: python -m hdlcd_tools.tools.hexchanger
- hdlcd-hexinjector: python -m hdlcd_tools.tools.hexinjector
- hdlcd-logclient: python -m hdlcd_tools.tools.logclient
- hdlcd-monitor: python -m hdlcd_tools.tools.monitor
- hdlcd-portkiller: python -m hdlcd_tools.tools.portkiller
- hdlcd-dissector: python -m hdlcd_tools.tools.dissector
"""
