from ghlib import report_log


#============================================
class User:
	"""
	One contributor identity, keyed by login.

	Users compare by identity, not value. The registry guarantees a single
	instance per login, so sets of users deduplicate contributors.
	"""

	def __init__(self, login: str, url: str):
		self.login = login
		self.url = url

	@property
	def id(self) -> str:
		return self.login

	#============================================
	def mention(self) -> str:
		"""
		Markdown reference to the user, e.g. "[@alice]".
		"""
		return f"[@{self.login}]"

	#============================================
	def link(self) -> str:
		"""
		Markdown link definition for the user.
		"""
		return f"[@{self.login}]: {self.url}"

	def __repr__(self) -> str:
		return f"User({self.login!r})"


#============================================
class UserRegistry:
	"""
	Login to User map scoped to one report run.
	"""

	def __init__(self):
		self._users: dict[str, User] = {}

	#============================================
	def resolve(self, raw_user: dict | None) -> User | None:
		"""
		Return the User for a raw user record, creating it on first sight.
		"""
		if not raw_user:
			return None
		login = str(raw_user.get("login") or "").strip()
		if not login:
			return None
		report_log.debug(f"  Add user: {login}")
		user = self._users.get(login)
		if user is not None:
			return user
		url = str(raw_user.get("html_url") or "").strip()
		if not url:
			url = f"https://github.com/{login}"
		user = User(login, url)
		self._users[login] = user
		report_log.info(f"  Added new user: {login}")
		return user

	#============================================
	def get(self, login: str) -> User | None:
		return self._users.get((login or "").strip().lstrip("@"))

	#============================================
	def users(self) -> list[User]:
		"""
		All users ordered by login.
		"""
		return sorted(self._users.values(), key=lambda user: user.login)

	#============================================
	def render_links(self) -> str:
		"""
		One markdown link definition line per user.
		"""
		return "\n".join(user.link() for user in self.users())

	def __len__(self) -> int:
		return len(self._users)

	def __contains__(self, login: str) -> bool:
		return login in self._users
