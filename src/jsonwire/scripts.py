"""
JavaScript executed in the remote browser.

Function expressions are passed through :func:`jsonwire.util.to_execute_string`
before being sent; plain script bodies are sent as-is.
"""

MANUAL_FIND_BY_LINK_TEXT = """function (using, value, multiple, element) {
  var check = using === 'link text'
    ? function (linkText, text) { return linkText === text; }
    : function (linkText, text) { return linkText.indexOf(text) !== -1; };
  var links = (element || document).getElementsByTagName('a');
  var found = [];
  for (var i = 0; i < links.length; i++) {
    var linkText = links[i].innerText
      .replace(/^\\s+/, '')
      .replace(/\\s+$/, '')
      .replace(/\\s*\\r\\n\\s*/g, '\\n')
      .replace(/ +/g, ' ');
    if (check(linkText, value)) {
      if (!multiple) {
        return links[i];
      }
      found.push(links[i]);
    }
  }
  if (multiple) {
    return found;
  }
}"""

SIMULATE_KEYS = """function (keys) {
  var target = document.activeElement;
  function dispatch(kwArgs) {
    var event;
    if (typeof KeyboardEvent === 'function') {
      event = new KeyboardEvent(kwArgs.type, {
        bubbles: true,
        cancelable: kwArgs.cancelable || false,
        view: window,
        key: kwArgs.key || '',
        location: 3
      });
    } else {
      event = document.createEvent('KeyboardEvent');
      event.initKeyboardEvent(kwArgs.type, true, kwArgs.cancelable || false, window, kwArgs.key || '', 3, '', 0, '');
    }
    return target.dispatchEvent(event);
  }
  function dispatchInput() {
    var event;
    if (typeof Event === 'function') {
      event = new Event('input', { bubbles: true, cancelable: false });
    } else {
      event = document.createEvent('Event');
      event.initEvent('input', true, false);
    }
    return target.dispatchEvent(event);
  }
  keys = [].concat.apply([], keys.map(function (k) { return k.split(''); }));
  for (var i = 0; i < keys.length; ++i) {
    var key = keys[i];
    var performDefault = dispatch({ type: 'keydown', cancelable: true, key: key });
    performDefault = performDefault && dispatch({ type: 'keypress', cancelable: true, key: key });
    if (performDefault) {
      if ('value' in target) {
        target.value = target.value.slice(0, target.selectionStart) + key +
          target.value.slice(target.selectionEnd);
        dispatchInput();
      } else if (target.isContentEditable) {
        var node = document.createTextNode(key);
        var selection = window.getSelection();
        var range = selection.getRangeAt(0);
        range.deleteContents();
        range.insertNode(node);
        range.setStartAfter(node);
        range.setEndAfter(node);
        selection.removeAllRanges();
        selection.addRange(range);
      }
    }
    dispatch({ type: 'keyup', cancelable: true, key: key });
  }
}"""

SIMULATE_MOUSE = """function (kwArgs) {
  var position = kwArgs.position;
  function dispatch(args) {
    var event;
    if (typeof MouseEvent === 'function') {
      event = new MouseEvent(args.type, {
        bubbles: 'bubbles' in args ? args.bubbles : true,
        cancelable: args.cancelable || false,
        view: window,
        detail: args.detail || 0,
        screenX: window.screenX + position.x,
        screenY: window.screenY + position.y,
        clientX: position.x,
        clientY: position.y,
        ctrlKey: args.ctrlKey || false,
        shiftKey: args.shiftKey || false,
        altKey: args.altKey || false,
        metaKey: args.metaKey || false,
        button: args.button || 0,
        relatedTarget: args.relatedTarget
      });
    } else {
      event = document.createEvent('MouseEvents');
      event.initMouseEvent(args.type, args.bubbles || true, args.cancelable || false, window,
        args.detail || 0, window.screenX + position.x, window.screenY + position.y,
        position.x, position.y, args.ctrlKey || false, args.altKey || false,
        args.shiftKey || false, args.metaKey || false, args.button || 0,
        args.relatedTarget || null);
    }
    return args.target.dispatchEvent(event);
  }
  function down(target, button) {
    return dispatch({ button: button, cancelable: true, target: target, type: 'mousedown' });
  }
  function up(target, button) {
    return dispatch({ button: button, cancelable: true, target: target, type: 'mouseup' });
  }
  function click(target, button, detail) {
    if (!down(target, button)) { return false; }
    if (!up(target, button)) { return false; }
    return dispatch({ button: button, cancelable: true, detail: detail, target: target, type: 'click' });
  }
  function move(currentElement, newElement, xOffset, yOffset) {
    if (newElement) {
      var bbox = newElement.getBoundingClientRect();
      if (xOffset == null) { xOffset = (bbox.right - bbox.left) * 0.5; }
      if (yOffset == null) { yOffset = (bbox.bottom - bbox.top) * 0.5; }
      position = { x: bbox.left + xOffset, y: bbox.top + yOffset };
    } else {
      position.x += xOffset || 0;
      position.y += yOffset || 0;
      newElement = document.elementFromPoint(position.x, position.y);
    }
    if (currentElement !== newElement) {
      dispatch({ type: 'mouseout', target: currentElement, relatedTarget: newElement });
      dispatch({ type: 'mouseleave', target: currentElement, relatedTarget: newElement, bubbles: false });
      dispatch({ type: 'mouseenter', target: newElement, relatedTarget: currentElement, bubbles: false });
      dispatch({ type: 'mouseover', target: newElement, relatedTarget: currentElement });
    }
    dispatch({ type: 'mousemove', target: newElement, bubbles: true });
    return position;
  }
  var target = document.elementFromPoint(position.x, position.y);
  if (kwArgs.action === 'mousemove') {
    return move(target, kwArgs.element, kwArgs.xOffset, kwArgs.yOffset);
  } else if (kwArgs.action === 'mousedown') {
    return down(target, kwArgs.button);
  } else if (kwArgs.action === 'mouseup') {
    return up(target, kwArgs.button);
  } else if (kwArgs.action === 'click') {
    return click(target, kwArgs.button, 0);
  } else if (kwArgs.action === 'dblclick') {
    if (!click(target, kwArgs.button, 0)) { return false; }
    if (!click(target, kwArgs.button, 1)) { return false; }
    return dispatch({ type: 'dblclick', target: target, button: kwArgs.button, detail: 2, cancelable: true });
  }
}"""

TOUCH_SCROLL = """function (element, x, y) {
  var rect = { left: window.scrollX, top: window.scrollY };
  if (element) {
    var bbox = element.getBoundingClientRect();
    rect.left += bbox.left;
    rect.top += bbox.top;
  }
  window.scrollTo(rect.left + x, rect.top + y);
}"""

SET_DOCUMENT_COOKIE = "function (cookie) { document.cookie = cookie; }"

EXPIRE_DOCUMENT_COOKIE = """function (expiredCookie) {
  document.cookie = expiredCookie + '; domain=' + encodeURIComponent(document.domain) + '; path=/';
}"""

PAGE_SOURCE = "return document.documentElement.outerHTML;"

DOCUMENT_ACTIVE_ELEMENT = "return document.activeElement;"

DOCUMENT_ELEMENT = "return document.documentElement;"

DOCUMENT_BODY = "return document.body;"

PARENT_FRAME_ELEMENT = "return window.parent.frameElement;"

RELOAD = "location.reload();"

CLOSE_WINDOW = "window.close();"

IS_HTML_DOCUMENT = (
    "return document.body && document.body.tagName === document.body.tagName.toUpperCase();"
)

ELEMENT_CLICK = "function (element) { element.click(); }"

ELEMENT_SUBMIT = """function (element) {
  if (element.submit) {
    element.submit();
  } else if (element.type === 'submit' && element.click) {
    element.click();
  }
}"""

ELEMENT_INNER_TEXT = "function (element) { return element.innerText; }"

ELEMENT_IS_ENABLED = "function (element) { return !Boolean(element.hasAttribute('disabled')); }"

ELEMENT_HAS_ATTRIBUTE = "function (element, name) { return element.hasAttribute(name); }"

ELEMENT_GET_ATTRIBUTE = "return arguments[0].getAttribute(arguments[1]);"

ELEMENT_GET_PROPERTY = "return arguments[0][arguments[1]];"

ELEMENTS_EQUAL = "return arguments[0] === arguments[1];"

ELEMENT_IS_VISIBLE = """function (element) {
  var scrollX = document.documentElement.scrollLeft || document.body.scrollLeft;
  var scrollY = document.documentElement.scrollTop || document.body.scrollTop;
  do {
    if (window.getComputedStyle(element).opacity === '0') {
      return false;
    }
    var bbox = element.getBoundingClientRect();
    if (bbox.right + scrollX <= 0 || bbox.bottom + scrollY <= 0) {
      return false;
    }
  } while ((element = element.parentNode) && element.nodeType === 1);
  return true;
}"""

ELEMENT_POSITION = """function (element) {
  var bbox = element.getBoundingClientRect();
  var scrollX = document.documentElement.scrollLeft || document.body.scrollLeft;
  var scrollY = document.documentElement.scrollTop || document.body.scrollTop;
  return { x: scrollX + bbox.left, y: scrollY + bbox.top };
}"""

ELEMENT_SIZE = """function (element) {
  var bbox = element.getBoundingClientRect();
  return { width: bbox.right - bbox.left, height: bbox.bottom - bbox.top };
}"""

ELEMENT_COMPUTED_STYLE = """function (element, propertyName) {
  return window.getComputedStyle(element)[propertyName];
}"""

POLL_UNTIL = """function (poller, args, timeout, pollInterval, done) {
  poller = new Function(poller);
  var endTime = Number(new Date()) + timeout;
  (function poll() {
    var result = poller.apply(this, args);
    if (result != null) {
      done(result);
    } else if (Number(new Date()) < endTime) {
      setTimeout(poll, pollInterval);
    } else {
      done(null);
    }
  })();
}"""

TRUTHY_POLLER = """function (poller) {
  var args = Array.prototype.slice.apply(arguments).slice(1);
  var result = new Function(poller).apply(null, args);
  return result ? result : undefined;
}"""


# Probes run during capability detection

PROBE_CSS_TRANSFORM = """function () {
  var bbox = document.getElementById('a').getBoundingClientRect();
  return bbox.right - bbox.left === 4;
}"""

PROBE_ELEMENT_ID_ATTRIBUTE = "function (element) { return element.getAttribute('id'); }"

PROBE_OPACITY_SUPPORTED = (
    'var o = document.getElementById("a").style.opacity; return o && o.charAt(0) === "0";'
)

PROBE_SET_OPACITY_ZERO = 'document.getElementById("a").style.opacity = "0";'

PROBE_GET_ELEMENT_A = 'return document.getElementById("a");'

PROBE_GET_ELEMENT_DIS = 'return document.getElementById("dis");'

PROBE_COUNTER = "return window.counter;"

PROBE_INNER_HTML = "document.body.innerHTML = arguments[0];"

PROBE_DOCUMENT_WRITE = "document.write(arguments[0]);"

PROBE_ASYNC_CALLBACK = "arguments[0](true);"
