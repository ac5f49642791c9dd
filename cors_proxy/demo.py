from fastapi.responses import HTMLResponse

DEMO_HTML = """<!DOCTYPE html>
<html>
<head>
<title>Universal CORS Proxy</title>
<style>
body{font-family:Arial,sans-serif;max-width:800px;margin:0 auto;padding:20px}
code{background:#f4f4f4;padding:10px;display:block;margin:10px 0}
.status{font-weight:bold}
.error{color:red}
.success{color:green}
</style>
</head>
<body>
<h1>Universal CORS Proxy</h1>
<p>Make cross-origin requests to any API.</p>
<h2>Usage</h2>
<code>http://localhost:8111/?url=https://api.example.com/endpoint</code>
<h2>Test</h2>
<input type="url" id="u" placeholder="API URL" style="width:400px;padding:5px">
<button onclick="send('GET')">GET</button>
<button onclick="send('POST')">POST</button>
<h3>Result:</h3>
<p class="status" id="s">Ready</p>
<code id="r">No requests made</code>
<script>
async function send(method){
  const u=document.getElementById('u').value,s=document.getElementById('s'),r=document.getElementById('r');
  if(!u){s.textContent='Enter URL';s.className='status error';return}
  const init={method:method};
  if(method==='POST'){
    init.headers={'Content-Type':'application/json'};
    init.body=JSON.stringify({msg:'Hello',ts:Date.now()});
  }
  try{
    s.textContent='Loading...';s.className='status';
    const x=await fetch('/?url='+encodeURIComponent(u),init),d=await x.text();
    s.textContent='Success: '+x.status;s.className='status success';r.textContent=d
  }catch(e){
    s.textContent='Error: '+e.message;s.className='status error';r.textContent=e
  }
}
</script>
</body>
</html>
"""


def demo_page() -> HTMLResponse:
    return HTMLResponse(DEMO_HTML, status_code=200)
