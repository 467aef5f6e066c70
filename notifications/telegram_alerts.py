import logging
from typing import Optional

from telegram import Bot


class OperatorAlerts:
    """Short messages to the operators' Telegram chat.

    Delivery problems are logged and never reach the caller.
    """

    def __init__(self, token: Optional[str], chat_id: Optional[int]):
        self.token = token
        self.chat_id = chat_id

    async def send(self, text: str) -> bool:
        if not self.token or not self.chat_id:
            logging.info("Operator alert not sent (Telegram not configured): %s", text)
            return False
        try:
            async with Bot(token=self.token) as bot:
                logging.info(f"Отправка сообщения в Telegram: chat_id={self.chat_id}, text={text}")
                await bot.send_message(chat_id=self.chat_id, text=text)
            return True
        except Exception:
            logging.exception(f"Ошибка при отправке Telegram-сообщения для chat_id={self.chat_id}")
            return False
