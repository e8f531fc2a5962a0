"""
Fixed document installed in every isolated rendering context.

The bootstrap script waits for the host's ``start`` message, takes the
transferred port, and renders the credential with the template when asked.
Templates call ``window.renderMethodReady()`` once fully rendered, or
``window.renderMethodError(message)`` to report a failure.

The credential is embedded as an inert ``application/ld+json`` script
element whose text is set before the template is installed, so a template
can read the disclosed data but cannot rewrite it before it is read.
"""

from __future__ import annotations

import html

from renderer.app.render.sandbox import SandboxPolicy


_CSP_PLACEHOLDER = "%CONTENT_SECURITY_POLICY%"

_SRCDOC_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta http-equiv="content-security-policy" content="%CONTENT_SECURITY_POLICY%">
    <script>
// bootstrap renderer
window.addEventListener('message', event => {
  const {data: message, ports} = event;
  const port = ports && ports[0];
  if(!(message === 'start' && port)) {
    // ignore unknown message
    return;
  }

  if(!window.renderMethodReady) {
    window.renderMethodReady = function() {
      port.postMessage('ready');
    };
    window.renderMethodError = function(message) {
      port.postMessage({error: {message: String(message)}});
    };
  }

  port.onmessage = event => {
    const {jsonrpc, method, params} = event.data || {};
    if(!(jsonrpc === '2.0' && method === 'render' &&
      Array.isArray(params) && params.length === 1)) {
      window.renderMethodError('Unknown message format.');
      return;
    }
    try {
      render(params[0]);
    } catch(e) {
      window.renderMethodError(e && e.message || 'Render failed.');
    }
  };
  port.start();
});

function render({credential, template} = {}) {
  if(!(credential && typeof credential === 'object')) {
    throw new TypeError('"credential" must be an object.');
  }
  if(!(template && typeof template === 'string')) {
    throw new TypeError('"template" must be a string.');
  }

  // inert embedding; never executed
  const script = document.createElement('script');
  script.setAttribute('name', 'credential');
  script.type = 'application/ld+json';
  script.textContent = JSON.stringify(credential, null, 2);
  document.head.appendChild(script);

  // contextual fragment so template scripts execute; a template script
  // must call window.renderMethodReady() when rendering is complete
  document.body.append(
    document.createRange().createContextualFragment(template));
}
    </script>
  </head>

  <body>
  </body>
</html>
"""


def build_srcdoc(policy: SandboxPolicy) -> str:
    """Return the isolated context document declaring ``policy``."""
    return _SRCDOC_TEMPLATE.replace(
        _CSP_PLACEHOLDER,
        html.escape(policy.content_security_policy, quote=True),
    )
