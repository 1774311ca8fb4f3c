INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Video Assembler</title>
<style>
  body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; max-width: 960px;
         margin: 0 auto; padding: 20px; background: #f5f7fa; }
  .section { background: white; padding: 20px; border-radius: 8px; margin-bottom: 16px;
             box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
  .ok { color: #155724; } .missing { color: #721c24; }
  #status { margin-top: 10px; }
  li { display: flex; justify-content: space-between; padding: 4px 0; }
</style>
</head>
<body>
<h1>Video Assembler</h1>

<div class="section">
  <h2>Templates</h2>
  <p>Intro: <span id="intro-text">?</span> &middot; Outro: <span id="outro-text">?</span></p>
  <button onclick="checkTemplateStatus()">Refresh</button>
  <h3>Upload intro</h3>
  <input type="file" id="intro-file" accept="video/*">
  <button onclick="uploadTemplate('intro')">Upload intro</button>
  <h3>Upload outro</h3>
  <input type="file" id="outro-file" accept="video/*">
  <button onclick="uploadTemplate('outro')">Upload outro</button>
  <div id="status"></div>
</div>

<div class="section">
  <h2>API</h2>
  <code>POST /process-video</code> with form fields
  <code>customer_name</code> and <code>main_video</code> (file).
</div>

<div class="section">
  <h2>Processed videos</h2>
  <button onclick="loadVideos()">Refresh</button>
  <ul id="video-list"></ul>
</div>

<script>
  async function checkTemplateStatus() {
    const status = await (await fetch('/template-status')).json();
    for (const role of ['intro', 'outro']) {
      const el = document.getElementById(role + '-text');
      el.textContent = status[role] ? 'uploaded' : 'not uploaded';
      el.className = status[role] ? 'ok' : 'missing';
    }
  }

  async function uploadTemplate(role) {
    const input = document.getElementById(role + '-file');
    const statusEl = document.getElementById('status');
    if (!input.files[0]) { statusEl.textContent = 'Please select a file first'; return; }
    const form = new FormData();
    form.append('video', input.files[0]);
    statusEl.textContent = 'Uploading...';
    const response = await fetch('/upload-template/' + role, { method: 'POST', body: form });
    const body = await response.json();
    statusEl.textContent = response.ok ? body.message : 'Upload failed: ' + body.details;
    input.value = '';
    checkTemplateStatus();
  }

  async function loadVideos() {
    const data = await (await fetch('/videos')).json();
    const list = document.getElementById('video-list');
    list.replaceChildren();
    if (data.videos.length === 0) { list.textContent = 'No processed videos found'; return; }
    for (const name of data.videos) {
      const item = document.createElement('li');
      const label = document.createElement('span');
      label.textContent = name;
      const link = document.createElement('a');
      link.href = '/download/' + encodeURIComponent(name);
      link.textContent = 'Download';
      item.append(label, link);
      list.append(item);
    }
  }

  window.onload = () => { checkTemplateStatus(); loadVideos(); };
</script>
</body>
</html>
"""
