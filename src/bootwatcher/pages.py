from __future__ import annotations

from typing import Final

GENERIC_ERROR_HTML: Final[str] = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Something went wrong</title>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 20px; }
        h1 { color: #d93025; }
        .btn { display: inline-block; background-color: #1a73e8; color: white; padding: 10px 20px; text-decoration: none; border-radius: 4px; font-weight: bold; }
    </style>
</head>
<body>
    <h1>Something went wrong</h1>
    <p>The application could not be loaded. Please try again in a few minutes.</p>
    <a href="/" class="btn">Return to Application</a>
</body>
</html>
"""

MAPS_ERROR_HTML: Final[str] = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Google Maps API Error</title>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 20px; }
        h1 { color: #d93025; }
        .error-box { background-color: #f8f9fa; border-left: 4px solid #d93025; padding: 15px; margin-bottom: 20px; }
        .solution-box { background-color: #e8f0fe; border-left: 4px solid #1a73e8; padding: 15px; margin-bottom: 20px; }
        code { background-color: #f1f3f4; padding: 2px 4px; border-radius: 4px; font-family: monospace; }
        pre { background-color: #f1f3f4; padding: 15px; border-radius: 4px; overflow-x: auto; }
        .steps { margin-left: 20px; }
        .btn { display: inline-block; background-color: #1a73e8; color: white; padding: 10px 20px; text-decoration: none; border-radius: 4px; font-weight: bold; }
    </style>
</head>
<body>
    <h1>Google Maps API Error</h1>

    <div class="error-box">
        <h2>RefererNotAllowedMapError</h2>
        <p>This error occurs when the domain you're using to access the Google Maps JavaScript API is not authorized in the Google Cloud Console.</p>
        <p>Your current domain: <code id="current-domain">Loading...</code></p>
    </div>

    <div class="solution-box">
        <h2>How to Fix This Error</h2>
        <p>To resolve this issue, add your domain to the list of authorized referrers in the Google Cloud Console:</p>
        <ol class="steps">
            <li>Go to the <a href="https://console.cloud.google.com/google/maps-apis/credentials" target="_blank">Google Cloud Console Credentials page</a></li>
            <li>Select the project that contains your Google Maps API key</li>
            <li>Find your API key in the list and click on it to edit</li>
            <li>Under "Application restrictions", select "HTTP referrers (web sites)"</li>
            <li>Add your domain to the list of authorized referrers. For example:
                <pre id="domain-example">Loading...</pre>
            </li>
            <li>Click "Save" to apply the changes</li>
        </ol>
        <p><strong>Note:</strong> It may take a few minutes for the changes to take effect.</p>
    </div>

    <p>After adding your domain to the authorized referrers, you can return to the application:</p>
    <a href="/" class="btn">Return to Application</a>

    <script>
        document.getElementById('current-domain').textContent = window.location.origin;
        document.getElementById('domain-example').textContent = window.location.origin + '/*';
    </script>
</body>
</html>
"""
