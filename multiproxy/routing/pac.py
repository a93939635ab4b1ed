"""Network proxy configuration generation.

``generate()`` turns the proxy list and settings into one of three configs:

- ``ClearConfig`` when no usable proxy is active;
- ``FixedServersConfig`` in global mode (first active proxy by list order);
- ``PacScriptConfig`` in domain-based mode, carrying a ``FindProxyForURL``
  script and the same priority-ordered rule table for evaluation in Python.

The script and ``PacScriptConfig.find_proxy`` must agree with
``multiproxy.routing.resolver.resolve`` for every host.
"""

from __future__ import annotations

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from multiproxy.models.state import ProxyEntry, ProxyMode, ProxySettings
from multiproxy.routing.matcher import matches_any
from multiproxy.routing.resolver import active_proxies, by_priority, first_active

DIRECT = "DIRECT"

_PAC_TEMPLATE = """\
var RULES = {rules};

function endsWith(str, suffix) {{
  return str.length >= suffix.length &&
    str.substring(str.length - suffix.length) === suffix;
}}

function ruleMatches(pattern, host) {{
  if (!pattern || !host) {{
    return false;
  }}
  if (pattern.substring(0, 2) === "*.") {{
    var base = pattern.substring(2);
    if (!base) {{
      return false;
    }}
    return host === base || endsWith(host, pattern.substring(1));
  }}
  return host === pattern || endsWith(host, "." + pattern);
}}

function FindProxyForURL(url, host) {{
  for (var i = 0; i < RULES.length; i++) {{
    var patterns = RULES[i][1];
    for (var j = 0; j < patterns.length; j++) {{
      if (ruleMatches(patterns[j], host)) {{
        return RULES[i][0];
      }}
    }}
  }}
  return "{direct}";
}}
"""


class PacRule(BaseModel):
    """One proxy's rules, in the order they are checked."""

    proxy_id: str
    endpoint: str  # host:port with the port normalized
    patterns: list[str]

    @property
    def directive(self) -> str:
        return f"PROXY {self.endpoint}"


class ClearConfig(BaseModel):
    kind: Literal["clear"] = "clear"


class FixedServersConfig(BaseModel):
    kind: Literal["fixed_servers"] = "fixed_servers"
    scheme: str = "http"
    host: str
    port: int


class PacScriptConfig(BaseModel):
    kind: Literal["pac_script"] = "pac_script"
    data: str
    rules: list[PacRule] = Field(default_factory=list)

    def find_proxy(self, host: str) -> str:
        """Evaluate the rule table the same way the script does."""
        for rule in self.rules:
            if matches_any(rule.patterns, host):
                return rule.directive
        return DIRECT


ProxyConfig = Annotated[
    Union[ClearConfig, FixedServersConfig, PacScriptConfig],
    Field(discriminator="kind"),
]


def build_rules(proxies: list[ProxyEntry]) -> list[PacRule]:
    """Rule table for the usable active proxies, ordered by priority."""
    return [
        PacRule(
            proxy_id=proxy.id,
            endpoint=f"{proxy.host.strip()}:{proxy.port_number}",
            patterns=list(proxy.domains),
        )
        for proxy in by_priority(active_proxies(proxies))
    ]


def render_pac_script(rules: list[PacRule]) -> str:
    table = [[rule.directive, rule.patterns] for rule in rules]
    return _PAC_TEMPLATE.format(rules=json.dumps(table), direct=DIRECT)


def generate(
    proxies: list[ProxyEntry],
    settings: ProxySettings,
) -> ClearConfig | FixedServersConfig | PacScriptConfig:
    """Build the network configuration for the given proxies and mode."""
    if settings.mode == ProxyMode.GLOBAL:
        proxy = first_active(proxies)
        if proxy is None:
            return ClearConfig()
        return FixedServersConfig(host=proxy.host.strip(), port=proxy.port_number)

    rules = build_rules(proxies)
    if not rules:
        return ClearConfig()
    return PacScriptConfig(data=render_pac_script(rules), rules=rules)
