import uvicorn

if __name__ == '__main__':
	uvicorn.run("voicequiz.main:app", host="127.0.0.1", port=3000)
